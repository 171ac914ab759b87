"""
aepctl commands - argparse front end of the request engine.
"""
