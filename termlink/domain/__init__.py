"""
Concrete transports
"""
