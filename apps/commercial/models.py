"""
Commercial models: clients, leads and their contacts.

A contact is linked to at most one client or one lead. Converting a lead
creates a client and moves the lead's contact over to it.
"""
from django.conf import settings
from django.db import models
from apps.core.models import CompanyScopedModel, BaseModelManager, BaseModelQuerySet


class ClientQuerySet(BaseModelQuerySet):

    def active(self):
        return self.filter(is_active=True)


class Client(CompanyScopedModel):
    """A customer company."""

    name = models.CharField(max_length=255)
    tax_id = models.CharField(max_length=20, blank=True, default='', db_index=True)
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)
    termination_date = models.DateField(null=True, blank=True)
    reason_for_termination = models.TextField(blank=True, default='')

    objects = BaseModelManager.from_queryset(ClientQuerySet)()

    class Meta:
        db_table = 'clients'
        ordering = ['name']

    def __str__(self):
        return self.name


class Lead(CompanyScopedModel):
    """A prospective client tracked through the sales pipeline."""

    STATUS_NEW = 'NEW'
    STATUS_CONTACTED = 'CONTACTED'
    STATUS_QUALIFIED = 'QUALIFIED'
    STATUS_PROPOSAL = 'PROPOSAL'
    STATUS_NEGOTIATION = 'NEGOTIATION'
    STATUS_CONVERTED = 'CONVERTED'
    STATUS_LOST = 'LOST'

    STATUS_CHOICES = [
        (STATUS_NEW, 'New'),
        (STATUS_CONTACTED, 'Contacted'),
        (STATUS_QUALIFIED, 'Qualified'),
        (STATUS_PROPOSAL, 'Proposal'),
        (STATUS_NEGOTIATION, 'Negotiation'),
        (STATUS_CONVERTED, 'Converted'),
        (STATUS_LOST, 'Lost'),
    ]

    name = models.CharField(max_length=255)
    tax_id = models.CharField(max_length=20, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_NEW,
        db_index=True,
    )
    notes = models.TextField(blank=True, default='')
    converted_at = models.DateTimeField(null=True, blank=True)
    converted_to_client = models.ForeignKey(
        Client,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='source_leads',
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        db_table = 'leads'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.status})"


class Contact(CompanyScopedModel):
    """A person at a client or lead."""

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    position = models.CharField(max_length=100, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)
    client = models.OneToOneField(
        Client,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='contact',
    )
    lead = models.OneToOneField(
        Lead,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='contact',
    )

    class Meta:
        db_table = 'contacts'
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_available(self):
        """Not linked to any client or lead."""
        return self.client_id is None and self.lead_id is None
