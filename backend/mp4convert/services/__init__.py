"""
Request-path services: upload storage and archive streaming.
"""
