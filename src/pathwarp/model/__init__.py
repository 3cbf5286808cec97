"""
The MODEL layer contains pure data structures and geometry.
It has NO knowledge of the GUI (Qt) or of the on-screen viewport.
It deals with the path, the grid, the deformation and the warp parameters.
"""
