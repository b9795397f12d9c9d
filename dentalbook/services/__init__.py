"""Adapters for external collaborators (geocoding, email notifications)"""
