"""
Cloud Relay — Services Layer
==============================

What:  Provider clients sitting between routes (HTTP) and the third-party APIs.

Service Inventory:
    - ChatService (abstract): single-turn chat completion interface
    - AnthropicChatService: ChatService over the Anthropic Messages API
    - BlobStorageService: SAS issuance and image listing (Azure Blob Storage)
    - UploadService: temporary on-disk staging of uploaded images
    - VisionOcrClient / TranslatorClient: Azure Vision OCR and Translator calls
    - TextExtractionService: the OCR → translation pipeline
"""
