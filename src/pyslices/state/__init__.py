"""State layer.

Per entity type: the in-memory record cache (:mod:`pyslices.state.store`)
and the lifecycle event channel (:mod:`pyslices.state.events`). Only the
slice bundle that owns them is allowed to mutate the cache or emit.
"""
