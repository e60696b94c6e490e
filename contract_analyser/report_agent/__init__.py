"""Report rendering agent"""
