"""
FastAPI Application Package

This package contains the FastAPI application that serves the live price
feed, swap quotes and simulated swap submission over REST and WebSocket.
"""
