"""
Analysis Engine Module

Time-series analytics and portfolio aggregation:
- Moving averages, squared log returns, EWMA variance
- Continuous volatility index (CVI)
- Weekly vs current momentum ranking
- Weighted portfolio price/CVI paths and diversification benefit
"""

__version__ = "0.1.0"
