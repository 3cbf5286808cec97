"""
The CONTROLLER layer drives the model: the per-frame recompute, pointer
gestures, image loading and the high-resolution export.
"""
