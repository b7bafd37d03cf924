"""vidcollage — command-line video compositor.

Place several input videos into fixed rectangles ("tiles") of one larger
output frame and encode the result, frame by frame, until the longest
input runs out. Tiles are given as ``path@WxH+X+Y`` specs on the command
line or in a YAML layout manifest.
"""
