"""
Storage gateway package.

This package provides a FastAPI application that hands out signed URLs for
objects in a Cloud Storage bucket, stubs file uploads/downloads and reads and
writes documents in a Firestore collection through the Firebase Admin SDK.
"""
