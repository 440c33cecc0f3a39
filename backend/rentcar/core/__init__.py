"""Core infrastructure: settings, Firestore, security, monitoring, scheduling"""
