"""Unit tests for domain, application and infrastructure layers"""
