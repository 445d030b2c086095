"""
Configuration settings for the Notes Tutor engine.

This file centralizes all configuration so you can easily adjust parameters.
Every value can be overridden with an environment variable of the same name
(a local .env file is loaded automatically).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Base directory (where this project lives)
BASE_DIR = Path(__file__).parent.parent

# Data storage directory
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))

# Relational store for uploads, questions, quizzes and progress.
# SQLite by default; PostgreSQL URLs are supported too.
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'tutor.db'}")

# ChromaDB storage location (chunk vectors)
CHROMA_DB_DIR = Path(os.getenv("CHROMA_DB_DIR", DATA_DIR / "chroma_db"))

# Prefix for the per-dimension chunk collections.
# Vectors of different lengths can never share a collection, so each
# dimensionality gets its own: e.g. notes_chunks_384d, notes_chunks_768d
COLLECTION_PREFIX = os.getenv("COLLECTION_PREFIX", "notes_chunks_")

# =============================================================================
# CHUNKING CONFIGURATION
# =============================================================================

# Maximum chunk size in characters.
# Words are packed greedily and never split, so a chunk only exceeds this
# when a single word is longer than the limit.
# 2000 chars is roughly 512 tokens for English prose.
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "2000"))

# =============================================================================
# EMBEDDING CONFIGURATION
# =============================================================================

# Which embedding gateway to use: "sentence-transformers" or "ollama"
EMBEDDING_BACKEND = os.getenv("EMBEDDING_BACKEND", "sentence-transformers")

# Embedding model name (sentence-transformers backend)
# This model creates 384-dimensional vectors
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")

# Declared embedding dimension.
# Every stored vector must have exactly this many values.
EMBEDDING_DIMENSION = int(os.getenv("EMBEDDING_DIMENSION", "384"))

# Optional prefixes for asymmetric models (e5 uses "query: " / "passage: ")
EMBEDDING_QUERY_PREFIX = os.getenv("EMBEDDING_QUERY_PREFIX", "")
EMBEDDING_DOCUMENT_PREFIX = os.getenv("EMBEDDING_DOCUMENT_PREFIX", "")

# =============================================================================
# OLLAMA CONFIGURATION
# =============================================================================

# Default Ollama model for answers and quizzes
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")

# Ollama embedding model (only used when EMBEDDING_BACKEND=ollama)
OLLAMA_EMBEDDING_MODEL = os.getenv("OLLAMA_EMBEDDING_MODEL", "nomic-embed-text")

# Ollama API base URL (default local installation)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

# Gateway timeouts in seconds. A call that runs past them fails the request.
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "120"))
EMBEDDING_TIMEOUT_SECONDS = float(os.getenv("EMBEDDING_TIMEOUT_SECONDS", "30"))

# =============================================================================
# RAG CONFIGURATION
# =============================================================================

# Number of chunks to retrieve for context
TOP_K_CHUNKS = int(os.getenv("TOP_K_CHUNKS", "5"))

# Upper bound on the context block sent to the LLM
MAX_CONTEXT_CHARS = int(os.getenv("MAX_CONTEXT_CHARS", "8000"))

# Length of the source excerpts returned with an answer
SOURCE_EXCERPT_CHARS = int(os.getenv("SOURCE_EXCERPT_CHARS", "200"))

ANSWER_MAX_TOKENS = int(os.getenv("ANSWER_MAX_TOKENS", "1000"))
ANSWER_TEMPERATURE = float(os.getenv("ANSWER_TEMPERATURE", "0.7"))

# =============================================================================
# QUIZ & MASTERY CONFIGURATION
# =============================================================================

QUIZ_TITLE = "Adaptive Practice Quiz"
QUIZ_NUM_QUESTIONS = int(os.getenv("QUIZ_NUM_QUESTIONS", "5"))

# How many of the weakest topics feed a quiz
QUIZ_WEAK_TOPIC_LIMIT = int(os.getenv("QUIZ_WEAK_TOPIC_LIMIT", "3"))

# Chunk budget for weak-topic content, and for the fallback sample
QUIZ_TOPIC_CHUNK_LIMIT = int(os.getenv("QUIZ_TOPIC_CHUNK_LIMIT", "10"))
QUIZ_SAMPLE_CHUNK_LIMIT = int(os.getenv("QUIZ_SAMPLE_CHUNK_LIMIT", "5"))

QUIZ_MAX_TOKENS = int(os.getenv("QUIZ_MAX_TOKENS", "2000"))
QUIZ_TEMPERATURE = float(os.getenv("QUIZ_TEMPERATURE", "0.7"))

# A quiz scoring at least this much counts as one "correct" attempt
MASTERY_PASS_SCORE = int(os.getenv("MASTERY_PASS_SCORE", "70"))

# Topics below this mastery show up as weak on the dashboard
WEAK_TOPIC_THRESHOLD = int(os.getenv("WEAK_TOPIC_THRESHOLD", "70"))

# =============================================================================
# INTERFACE CONFIGURATION
# =============================================================================

# Owner id used by the CLI (the web app reads it from the X-User-Id header)
TUTOR_USER_ID = os.getenv("TUTOR_USER_ID", "local-user")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

WEB_HOST = os.getenv("WEB_HOST", "127.0.0.1")
WEB_PORT = int(os.getenv("WEB_PORT", "8000"))

# Upload bodies larger than this are rejected
MAX_UPLOAD_CHARS = int(os.getenv("MAX_UPLOAD_CHARS", "2000000"))

# =============================================================================
# LLM PROMPT TEMPLATES
# =============================================================================

SYSTEM_PROMPT = """You are an expert, patient tutor helping a K-12 student.
You only know what is in the student's own class notes, which are given to you as context.
Explain concepts in an age-appropriate way and be encouraging."""

# Template for grounded answers
ANSWER_PROMPT_TEMPLATE = """You are an expert tutor helping a K-12 student. Use the provided notes from their classes to answer their question clearly and step-by-step.

Notes from their uploaded materials:
---
{context}
---

Student's Question: {question}

Please provide a clear, educational answer that:
1. Directly addresses their question
2. Uses the information from their notes when relevant
3. Explains concepts in an age-appropriate way
4. Provides examples when helpful
5. Encourages further learning

Answer:"""

# Template for quiz generation
QUIZ_PROMPT_TEMPLATE = """Based on the following educational content, generate exactly {num_questions} multiple choice questions for a K-12 student. Each question must have exactly 4 options with only one correct answer.

Each section of the content starts with a [Subject / Topic / Subtopic] header.

Content:
---
{content}
---

Respond with ONLY a JSON array (no prose, no Markdown) of {num_questions} objects with this structure:
{{
  "question": "The question text",
  "options": ["Option A", "Option B", "Option C", "Option D"],
  "correct_answer": 0,
  "explanation": "Brief explanation of why this answer is correct",
  "subject": "subject from the header of the section the question is based on",
  "topic": "topic from that header",
  "subtopic": "subtopic from that header"
}}

"correct_answer" is the 0-based index of the correct option.

Make sure the questions are:
1. Age-appropriate for K-12 students
2. Directly related to the content provided
3. Clear and unambiguous
4. Educational and helpful for learning

JSON Response:"""
