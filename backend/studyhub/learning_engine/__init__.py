"""
Learning engines.

Pure scheduling, selection and scoring logic. Nothing here touches the
database, the clock or the web framework; callers pass plain data and "now".
"""
