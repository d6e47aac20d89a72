"""Command line interface for aptrb"""
