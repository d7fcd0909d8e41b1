"""
bridge — Front-end command and event surface

Commands the UI invokes and the events the backend emits back to it.
Part of DayLight — Desktop Planner Bridge.
"""
