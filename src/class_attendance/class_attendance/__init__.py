"""QR class attendance package.

Organized by feature modules (sessions, attendance, classes, tokens) with a
thin Flask controller layer over service/repository layers. The session store
is MySQL in deployments and an in-process store for tests and local runs.
"""
