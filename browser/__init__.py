"""
browser — Outbound HTTP helpers

Part of DayLight — Desktop Planner Bridge.
"""
