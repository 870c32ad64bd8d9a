"""Shared models, exceptions, logging and metrics for the order data generator."""
