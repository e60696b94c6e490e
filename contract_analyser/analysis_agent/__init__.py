"""Contract analysis agent"""
