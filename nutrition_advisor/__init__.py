"""Nutrition Advisor: upload a food photo and get a nutritional analysis."""

__version__ = "1.0.0"
