"""Guard Attendance package.

This package is organized by feature modules (guards, sites, shifts,
attendance, exceptions, audit, ...) with a thin Flask controller layer and
service/repository layers underneath.
"""
