"""Core settings, errors and infrastructure"""
