"""
Smart Shop Tracker - Source Package

A personal shopping and spending tracker: log purchases and planned
purchases, see where the money went, and let an AI model fill in the
form from a sentence or a screenshot.

DESIGN PRINCIPLES:
1. AI suggests → User reviews the form → User saves
2. A corrupt store never crashes the app
3. Statistics are always recomputed from the records
4. Storage and AI are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "Smart Shop Team"
