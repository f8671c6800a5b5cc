"""
Shared Kernel

Value objects, domain event plumbing, the unit of work and the message bus
used by every app, plus the encryption primitives for listing secrets.
"""
