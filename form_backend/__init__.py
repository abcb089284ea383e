"""
Form Canvas Backend - FastAPI service exposing a FormBuilder over REST and WebSocket.
"""
