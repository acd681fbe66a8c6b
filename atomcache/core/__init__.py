"""Core services: logging setup and application context"""
