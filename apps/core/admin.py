"""
Django admin configuration for core app.
"""
from django.contrib import admin

admin.site.site_header = "Gestio Administration"
admin.site.site_title = "Gestio Admin"
admin.site.index_title = "Welcome to Gestio Administration"
