"""
Water quality analysis engine.

Scores a stream of water sensor readings (pH, TDS, temperature, conductivity,
turbidity) with LSTM sequence models backed by rule-based fallbacks.
"""

__version__ = "1.0.0"
