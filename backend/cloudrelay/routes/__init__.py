"""
Cloud Relay — API Routes Package
==================================

Route Inventory:
    - chat.py:     POST /ask, GET /test-api
    - storage.py:  GET /generate-sas-url/{blobName}, GET /get-images
    - extract.py:  POST /extract-text
    - health.py:   GET /health

Routes stay thin: pull input out of the request, call a service from the
ProviderContext, shape the response. Errors are raised and left to the
global handlers in main.py, except on the chat endpoints, which have their
own error bodies.
"""
