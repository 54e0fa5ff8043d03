"""Roster domain - therapists, clock-in state and the service catalog"""
