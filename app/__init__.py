"""
Customer Service
"""
