"""QR Attendance package.

Feature modules (identity, sessions, attendance, users) sit on top of
repository Protocols, with a thin Flask controller layer and a container
that wires concrete MySQL stores in.
"""
