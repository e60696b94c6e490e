"""Retention cleanup agent"""
