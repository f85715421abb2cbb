"""
Configuration settings for the agents package.
"""

import os

from dotenv import load_dotenv

load_dotenv()

#==============================================================================
# PRESENTATION GENERATION MODELS
#==============================================================================

PRESENTATION_MODEL = os.getenv("PRESENTATION_MODEL", "gemini-2.5-flash")
IMAGE_GENERATION_MODEL = "gemini-2.5-flash-image"

#==============================================================================
# OUTLINE PLANNING
#==============================================================================

OUTLINE_MAX_TOKENS = 4000
OUTLINE_TEMPERATURE = 0.4

#==============================================================================
# SLIDE CONTENT GENERATION
#==============================================================================

SLIDE_MAX_TOKENS = 2000
SLIDE_TEMPERATURE = 0.6

# Blackboard entries quoted into a single slide prompt
MAX_RELATED_ENTRIES = 5

# Neighbouring outline titles shown on each side of the current slide
STORY_CONTEXT_WINDOW = 3

#==============================================================================
# CHECKPOINTING & IMAGES
#==============================================================================

# Persist the slide list after every N generated slides (and after the last one)
CHECKPOINT_EVERY_N_SLIDES = 3

# Upper bound on image generation calls per run
MAX_IMAGES_PER_PRESENTATION = 5

IMAGE_GENERATION_TIMEOUT = float(os.getenv("IMAGE_GENERATION_TIMEOUT", "120"))

#==============================================================================
# LLM TRANSPORT
#==============================================================================

# The presentation pipeline falls back instead of retrying, so retries default to 0.
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "180"))
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "0"))
LLM_RETRY_DELAY_SECONDS = float(os.getenv("LLM_RETRY_DELAY_SECONDS", "2.0"))

#==============================================================================
# CREDENTIALS
#==============================================================================

def get_gemini_api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


def get_supabase_url() -> str:
    return os.getenv("SUPABASE_URL") or ""


def get_supabase_key() -> str:
    return os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or ""


def get_image_function_key() -> str:
    return os.getenv("IMAGE_FUNCTION_KEY") or get_supabase_key()
