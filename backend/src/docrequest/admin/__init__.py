"""Administrative management of entity type configurations"""
