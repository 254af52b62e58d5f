"""Handlers that bring one area of host configuration in line with the spec."""