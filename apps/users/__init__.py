"""Users app package.

Custom user model with a guest/host role set, the identity resolver that
turns a request into an ``Identity``, and the route authorization
middleware that partitions guest and host space. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL.
"""
