from django.urls import path
from clm import views

urlpatterns = [
    # Authentication URLs
    path('', views.login_view, name='login'),
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),

    # Dashboard URL
    path('dashboard/', views.dashboard_view, name='dashboard'),

    # Contract Management
    path('contracts/', views.contract_list, name='contract_list'),
    path('contracts/create/', views.contract_create, name='contract_create'),
    path('contracts/export/', views.export_contracts_excel, name='export_contracts_excel'),
    path('contracts/<uuid:pk>/', views.contract_detail, name='contract_detail'),
    path('contracts/<uuid:pk>/update/', views.contract_update, name='contract_update'),
    path('contracts/<uuid:pk>/delete/', views.contract_delete, name='contract_delete'),
    path('contracts/<uuid:pk>/versions/', views.contract_versions, name='contract_versions'),
    path('contracts/<uuid:pk>/timeline.pdf', views.contract_timeline_pdf, name='contract_timeline_pdf'),

    # Lifecycle
    path('contracts/<uuid:pk>/finalize/', views.contract_finalize, name='contract_finalize'),
    path('contracts/<uuid:pk>/extend/', views.contract_extend, name='contract_extend'),
    path('contracts/<uuid:pk>/amend/', views.contract_amend, name='contract_amend'),
    path('contracts/<uuid:pk>/revert/', views.contract_revert, name='contract_revert'),

    # Bid Agenda & Vendors
    path('contracts/<uuid:pk>/steps/add/', views.step_add, name='step_add'),
    path('contracts/<uuid:pk>/agenda/save/', views.agenda_save, name='agenda_save'),
    path('contracts/<uuid:pk>/vendors/add/', views.vendor_add, name='vendor_add'),
    path('steps/<uuid:step_id>/delete/', views.step_delete, name='step_delete'),
    path('vendors/<uuid:vendor_id>/delete/', views.vendor_delete, name='vendor_delete'),

    # API Endpoints
    path('api/contracts/<uuid:pk>/progress/', views.api_contract_progress, name='api_contract_progress'),
    path('api/contracts/<uuid:pk>/appoint-vendor/', views.api_appoint_vendor, name='api_appoint_vendor'),
]
