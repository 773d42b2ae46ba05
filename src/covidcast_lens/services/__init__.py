"""
Shared service utilities.

- http.py - ``requests.Session`` with retry/backoff used by every datasource
"""
