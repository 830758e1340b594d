"""
BookBrief Backend — Services Layer
====================================

Service Inventory:
    - SummaryProvider (abstract) / GeminiSummaryProvider: LLM text generation
    - SummarizationService: passthrough, provider summary or local fallback
    - highlights: extract_highlight(), the one-line teaser of a summary
    - PdfTextExtractor: PDF → plain text + page count
    - FileService: upload validation and the on-disk document store
    - BookIngestionWorkflow: upload → extract → summarize → persist
    - SummaryLifecycleManager: edit, delete, regenerate summaries
    - NoteService: reader notes on summaries
    - AuthService: signup, login, users

Each module exposes a ready-made singleton wired from settings; tests build
their own instances with fakes injected.
"""
