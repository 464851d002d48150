"""
Security module - Fixed cryptographic parameters.
"""
