"""
AI Module - generative providers, failover and diagnostics.
"""
