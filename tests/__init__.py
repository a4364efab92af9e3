"""
SVAR Forecast Toolbox Test Suite

Tests for the conditioning validator, the volatility path forecasters, the
predictive path simulator, the result aggregator and the forecast entry point.
"""
