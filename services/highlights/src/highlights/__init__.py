"""
CorporaViewer highlights service.

Resolves word, phrase and speaker queries over a meeting's transcript
into the transcript elements and PDF regions to highlight, streamed
chunk by chunk as newline-delimited JSON.
"""
