"""
auth — OAuth loopback capture

Captures a single OAuth2 authorization code through a short-lived
loopback HTTP listener and hands it to an asyncio waiter.
Part of DayLight — Desktop Planner Bridge.
"""
