"""
Element rule table: validation, the CRUD store and the default-rule seeder.
"""
