"""Cogs package - Discord views and commands"""
