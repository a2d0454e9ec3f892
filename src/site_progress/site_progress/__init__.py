"""Site Progress package.

Organized by feature modules (employees, projects, daily_progress) with a thin
Flask controller layer on top of service/repository layers.
"""
