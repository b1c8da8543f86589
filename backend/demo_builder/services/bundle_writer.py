import os
import json
import shutil
import logging
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

FRONTEND_PACKAGE = {
    "name": "demo-frontend",
    "version": "0.1.0",
    "private": True,
    "scripts": {"dev": "next dev", "build": "next build", "start": "next start", "lint": "next lint"},
    "dependencies": {
        "next": "14.0.0",
        "react": "^18",
        "react-dom": "^18",
        "@segment/analytics-next": "^1.0.0"
    },
    "devDependencies": {
        "typescript": "^5",
        "@types/node": "^20",
        "@types/react": "^18",
        "@types/react-dom": "^18",
        "tailwindcss": "^3.3.0",
        "autoprefixer": "^10.0.1",
        "postcss": "^8"
    }
}

BACKEND_PACKAGE = {
    "name": "demo-backend",
    "version": "1.0.0",
    "main": "server.js",
    "scripts": {"start": "node server.js", "dev": "nodemon server.js"},
    "dependencies": {"express": "^4.18.2", "cors": "^2.8.5", "dotenv": "^16.3.1", "axios": "^1.6.0"},
    "devDependencies": {"nodemon": "^3.0.1"}
}

NEXT_CONFIG = """/** @type {import('next').NextConfig} */
const nextConfig = {}

module.exports = nextConfig
"""

TAILWIND_CONFIG = """/** @type {import('tailwindcss').Config} */
module.exports = {
  content: ['./app/**/*.{js,ts,jsx,tsx,mdx}', './components/**/*.{js,ts,jsx,tsx,mdx}'],
  theme: { extend: {} },
  plugins: [],
}
"""

POSTCSS_CONFIG = """module.exports = {
  plugins: { tailwindcss: {}, autoprefixer: {} },
}
"""

TSCONFIG = {
    "compilerOptions": {
        "target": "es5",
        "lib": ["dom", "dom.iterable", "es6"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "incremental": True,
        "plugins": [{"name": "next"}],
        "paths": {"@/*": ["./*"]}
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
    "exclude": ["node_modules"]
}

LAYOUT = """import type {{ Metadata }} from 'next'
import '../styles/globals.css'

export const metadata: Metadata = {{
  title: {title},
  description: {description},
}}

export default function RootLayout({{ children }}: {{ children: React.ReactNode }}) {{
  return (
    <html lang="en">
      <body>{{children}}</body>
    </html>
  )
}}
"""

PAGE = """'use client';

import {{ useEffect }} from 'react';
import {{ trackPageView, trackEvent }} from '../lib/analytics';

export default function Home() {{
  useEffect(() => {{
    trackPageView('Homepage', {{ customerName: {name} }});
  }}, []);

  return (
    <main className="min-h-screen">
      <nav className="flex justify-between items-center p-4 shadow">
        <img className="h-8 w-auto" src={logo} alt={alt} />
        <button
          className="bg-blue-600 text-white px-4 py-2 rounded-md"
          onClick={{() => trackEvent('Button Clicked', {{ buttonName: 'Sign In', location: 'header' }})}}
        >
          Sign In
        </button>
      </nav>
      <section className="py-24 text-center bg-gradient-to-r from-blue-600 to-purple-700 text-white">
        <h1 className="text-5xl font-bold">Welcome to {{{name}}}</h1>
      </section>
    </main>
  );
}}
"""

ANALYTICS = """import {{ AnalyticsBrowser }} from '@segment/analytics-next';

const analytics = typeof window !== 'undefined'
  ? AnalyticsBrowser.load({{ writeKey: {write_key} }})
  : null;

export const trackPageView = (pageName: string, properties?: Record<string, any>) => {{
  analytics?.page(pageName, properties);
}};

export const trackEvent = (eventName: string, properties?: Record<string, any>) => {{
  analytics?.track(eventName, properties);
}};

export const identifyUser = (userId: string, traits?: Record<string, any>) => {{
  analytics?.identify(userId, traits);
}};

export default analytics;
"""

GLOBAL_CSS = """@tailwind base;
@tailwind components;
@tailwind utilities;

html {
  scroll-behavior: smooth;
}
"""

SERVER = """const express = require('express');
const cors = require('cors');
const dotenv = require('dotenv');
const axios = require('axios');

dotenv.config();

const app = express();
const PORT = process.env.PORT || 3001;

app.use(cors());
app.use(express.json());

app.get('/profile', async (req, res) => {
  try {
    const response = await axios.get(
      `https://profiles.segment.com/v1/spaces/${process.env.SEGMENT_UNIFY_SPACE_ID}/collections/users/profiles/user_id:demo_user/traits`,
      { headers: { Authorization: `Bearer ${process.env.SEGMENT_PROFILE_TOKEN}` } }
    );
    res.json(response.data.traits || {});
  } catch (error) {
    console.error('Error fetching profile:', error.message);
    res.status(500).json({ error: 'Failed to fetch profile' });
  }
});

module.exports = app;

if (require.main === module) {
  app.listen(PORT, () => console.log(`Server running on port ${PORT}`));
}
"""


@dataclass
class DemoWorkspace:
    root: str
    frontend_dir: str
    backend_dir: str


@contextmanager
def demo_workspace(root: Optional[str] = None, prefix: str = "demo-") -> Iterator[DemoWorkspace]:
    """Scratch directory for one provisioning run, removed on every exit path."""
    if root:
        os.makedirs(root, exist_ok=True)
    demo_dir = tempfile.mkdtemp(prefix=prefix, dir=root)
    workspace = DemoWorkspace(
        root=demo_dir,
        frontend_dir=os.path.join(demo_dir, "frontend"),
        backend_dir=os.path.join(demo_dir, "backend")
    )
    os.makedirs(workspace.frontend_dir)
    os.makedirs(workspace.backend_dir)
    logging.info(f"Created demo directory: {demo_dir}")
    try:
        yield workspace
    finally:
        try:
            shutil.rmtree(demo_dir)
            logging.info(f"Removed demo directory: {demo_dir}")
        except OSError as e:
            logging.warning(f"Failed to cleanup temp directory {demo_dir}: {e}")


def _write_files(base_dir: str, files: Dict[str, str]) -> None:
    for relative_path, content in files.items():
        path = os.path.join(base_dir, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)


def write_frontend_bundle(frontend_dir: str, generated: str, customer_name: str,
                          logo_url: Optional[str] = None, write_key: Optional[str] = None) -> None:
    """Next.js skeleton; the raw LLM output is kept in GENERATED.md."""
    logo = logo_url or f"https://via.placeholder.com/200x80?text={customer_name}"
    name = json.dumps(customer_name)
    _write_files(frontend_dir, {
        "package.json": json.dumps(FRONTEND_PACKAGE, indent=2),
        "next.config.js": NEXT_CONFIG,
        "tailwind.config.js": TAILWIND_CONFIG,
        "postcss.config.js": POSTCSS_CONFIG,
        "tsconfig.json": json.dumps(TSCONFIG, indent=2),
        "app/layout.tsx": LAYOUT.format(
            title=json.dumps(f"{customer_name} - Professional Demo"),
            description=json.dumps(f"Professional website for {customer_name} with Segment analytics integration")
        ),
        "app/page.tsx": PAGE.format(name=name, logo=json.dumps(logo), alt=json.dumps(f"{customer_name} Logo")),
        "lib/analytics.ts": ANALYTICS.format(write_key=json.dumps(write_key or "YOUR_WRITE_KEY")),
        "styles/globals.css": GLOBAL_CSS,
        "GENERATED.md": generated,
    })
    logging.info(f"Wrote frontend bundle to {frontend_dir}")


def write_backend_bundle(backend_dir: str, generated: str, profile_token: str, unify_space_id: str) -> None:
    """Express server with /profile; credentials go to .env.example only."""
    _write_files(backend_dir, {
        "package.json": json.dumps(BACKEND_PACKAGE, indent=2),
        "server.js": SERVER,
        ".env.example": f"SEGMENT_PROFILE_TOKEN={profile_token}\nSEGMENT_UNIFY_SPACE_ID={unify_space_id}\nPORT=3001\n",
        "GENERATED.md": generated,
    })
    logging.info(f"Wrote backend bundle to {backend_dir}")
