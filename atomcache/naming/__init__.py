#!/usr/bin/env python3
"""
Structure name grammar
"""
from .classifier import NameRule, NameClassifier, classify, DEFAULT_RULES

__all__ = ['NameRule', 'NameClassifier', 'classify', 'DEFAULT_RULES']
