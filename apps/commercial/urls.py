"""
Commercial API URLs.
"""
from django.urls import path
from apps.commercial import views

app_name = 'commercial'

urlpatterns = [
    path('clients', views.ClientListView.as_view(), name='client-list'),
    path('clients/<uuid:client_id>', views.ClientDetailView.as_view(), name='client-detail'),
    path('clients/<uuid:client_id>/deactivate', views.ClientDeactivateView.as_view(), name='client-deactivate'),
    path('clients/<uuid:client_id>/reactivate', views.ClientReactivateView.as_view(), name='client-reactivate'),

    path('leads', views.LeadListView.as_view(), name='lead-list'),
    path('leads/available-contacts', views.AvailableContactsView.as_view(), name='lead-available-contacts'),
    path('leads/<uuid:lead_id>', views.LeadDetailView.as_view(), name='lead-detail'),
    path('leads/<uuid:lead_id>/status', views.LeadStatusView.as_view(), name='lead-status'),
    path('leads/<uuid:lead_id>/convert', views.LeadConvertView.as_view(), name='lead-convert'),

    path('contacts', views.ContactListView.as_view(), name='contact-list'),
    path('contacts/options', views.ContactOptionsView.as_view(), name='contact-options'),
    path('contacts/<uuid:contact_id>', views.ContactDetailView.as_view(), name='contact-detail'),
]
