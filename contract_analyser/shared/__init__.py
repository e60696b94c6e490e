"""Shared modules used by every agent"""
