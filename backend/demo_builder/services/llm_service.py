import logging
from typing import Optional

import requests

from demo_builder.errors import GenerationError


class LLMService:
    def __init__(self, api_key: Optional[str], model: str = "gpt-4",
                 base_url: str = "https://api.openai.com/v1", temperature: float = 0.7,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.temperature = temperature
        self.session = session or requests.Session()

    def generate_frontend_code(self, customer_name: str, logo_url: Optional[str] = None,
                               write_key: Optional[str] = None, inspiration: str = "") -> str:
        """Ask the LLM for a branded Next.js site with analytics tracking."""
        logging.info(f"Generating frontend code for: {customer_name}")
        logo = logo_url or f"https://via.placeholder.com/200x80?text={customer_name}"
        prompt = f"""Create a modern, professional React Next.js application for {customer_name}.

1. Navigation header with the company logo ({logo}) top-left, 4-5 business-relevant links
   with submenus, and a Sign In button top-right that opens a modal.
2. Sign In modal accepting any credentials; on login send an analytics identify call.
3. Hero section with an industry-relevant image, headline and call to action.
4. Three or four content sections with realistic copy, images and CTAs.
5. Analytics: load @segment/analytics-next with AnalyticsBrowser.load({{ writeKey: '{write_key or 'YOUR_WRITE_KEY'}' }}),
   SSR-safe, tracking every page view, click, form submission and navigation interaction.
6. Next.js App Router, TypeScript, Tailwind CSS, mobile-first.

Files: app/page.tsx, app/layout.tsx, components/Navigation.tsx, components/SignInModal.tsx,
components/Hero.tsx, components/ContentSection.tsx, lib/analytics.ts, lib/types.ts,
styles/globals.css, package.json.
{self._inspiration_block(inspiration)}
Please provide the complete code for each file with proper imports and configurations."""
        return self._complete(prompt)

    def generate_backend_code(self, profile_token: str, unify_space_id: str, inspiration: str = "") -> str:
        """Ask the LLM for an Express server exposing GET /profile."""
        logging.info("Generating backend code")
        prompt = f"""Create a Node.js Express server with:

1. CORS, JSON body parsing and environment variable support.
2. A GET /profile endpoint that calls the Segment Profile API using token {profile_token}
   and Unify space id {unify_space_id}, returning user traits as JSON with error handling.
3. Files: server.js, routes/profile.js, package.json, .env.example.
4. Proper error handling and logging.
{self._inspiration_block(inspiration)}
Please provide the complete code for each file with proper imports and configurations."""
        return self._complete(prompt)

    @staticmethod
    def _inspiration_block(inspiration: str) -> str:
        if not inspiration:
            return ""
        return f"""
Study the following repository structure and coding patterns and use similar naming
conventions and architecture where appropriate:
{inspiration}
"""

    def _complete(self, prompt: str) -> str:
        """Send request to LLM API."""
        if not self.api_key:
            raise GenerationError("OPENAI_API_KEY environment variable is not set")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        data = {
            "model": self.model,
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "temperature": self.temperature
        }

        try:
            response = self.session.post(f"{self.base_url}/chat/completions", headers=headers, json=data)
        except requests.RequestException as e:
            logging.error(f"LLM request failed: {str(e)}")
            raise GenerationError(f"LLM request failed: {e}")

        if response.status_code != 200:
            logging.error(f"LLM API request failed: {response.status_code} {response.text[:300]}")
            raise GenerationError(f"API request failed: {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"LLM returned an unexpected payload: {e}")

        if not content or not content.strip():
            raise GenerationError("LLM returned empty response")
        logging.info(f"LLM Raw Response: {content[:300]}...")
        return content
