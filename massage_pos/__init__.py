"""Massage shop point-of-sale backend - therapist rotation and service board"""
