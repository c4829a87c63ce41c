"""CVNAdvanced event routing — filters, formats and sinks wired per route.

The route table is built once from the profile's ``map``.  The
RouteDispatcher renders each accepted event per destination and hands the
payload to that destination's sink on a worker thread.  A failing
destination never blocks the others.
"""
