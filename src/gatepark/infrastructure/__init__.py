"""Infrastructure layer: configuration loading and factories"""
