"""
Spark Therapy API: authentication and role-based access control for a
pediatric therapy clinic.
"""
