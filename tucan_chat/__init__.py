"""
Tucan Chat - backend do chat de consultoria de interiores da Tucan Home
"""

__version__ = "1.0.0"
