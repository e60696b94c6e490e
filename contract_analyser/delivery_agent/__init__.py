"""Report delivery agent"""
