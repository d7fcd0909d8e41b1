"""
theme — GTK 4 theme integration

Reads the user's GTK theme colors and notifies the front end when they change.
Part of DayLight — Desktop Planner Bridge.
"""
