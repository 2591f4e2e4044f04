"""
Invasive species range mapping over a species-importance raster.
"""
