"""auth/ -- Authentication and authorization package for the shopping mall.

Layer rule: auth/ imports only stdlib, third-party libraries, core/ and the
mall/ pagination helper. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
