"""Domain layer: entities, value objects, aggregates and pricing strategies"""
