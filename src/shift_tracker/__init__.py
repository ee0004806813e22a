"""Shift Tracker package.

Feature modules (intervals, shifts, violations, ratings, invites) expose
services built on repository protocols, with MySQL and in-memory storage
behind them and a thin Flask JSON layer on top.
"""
