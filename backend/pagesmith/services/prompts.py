"""Prompts for single-file web app generation.

Both prompts ask Claude for three delimited sections in a fixed order:
===INDEX.HTML===, ===README.MD===, ===LICENSE===. The parser in
generation_service locates each section by its own marker, so a response
that drops or reorders a section still yields the others.

Templates are filled with str.format; literal braces are doubled.
"""

SYSTEM_PROMPT = (
    "You are an expert web developer who creates single-file, production-ready web applications."
)

NEW_APP_PROMPT = """Your task is to generate an index.html file based on a user's brief. The file must contain both HTML structure and all necessary JavaScript logic within a <script> tag.

### CONTEXT ###
- You will be given a user's brief, a list of required attachments, and a list of automated checks the final code must pass.
- You must use the attachments and ensure the code is functional enough to pass the checks.

### EXAMPLE ###
**User's Brief:** Create a page that counts the words in the attached 'sample.txt' file and displays the count in an element with id '#word-count'.
**Attachments:** ['sample.txt']
**Checks:** ["document.getElementById('word-count').textContent > 0"]

**Correct Response:**
===INDEX.HTML===
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Word Counter</title>
  <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
</head>
<body>
  <div class="container mt-5">
    <h1>Word Count</h1>
    <p>The number of words in sample.txt is: <strong id="word-count">0</strong></p>
  </div>
  <script>
    document.addEventListener('DOMContentLoaded', () => {{
      const fileContent = "This is a sample file with five words.";
      const words = fileContent.trim().split(/\\s+/);
      document.getElementById('word-count').textContent = words.length;
    }});
  </script>
</body>
</html>
===README.MD===
# Word Counter
This application uses embedded data to count the words in a string and display the result.
## Setup
No setup required. Open the index.html file in a browser.
## Usage
The word count is calculated and displayed automatically on page load.
===LICENSE===
MIT License... (full text)

---

### YOUR TASK ###
Generate a response for the following request. Follow the example pattern exactly.
**IMPORTANT:** For attachments like CSV or JSON, embed the data directly into a JavaScript variable, just like the example. **DO NOT use `fetch`**. The JavaScript MUST be functional and perform all required calculations.
**DESIGN and UX:** Create a professional and clean user interface with Bootstrap 5. Wrap the main content in a Bootstrap card, center the main container and use appropriate margins and typography.
**User's Brief:** {brief}
**Attachments:** {attachments}
**Checks:** {checks}

Return your response in the exact format:
===INDEX.HTML===
[Your generated HTML and functional JavaScript here]
===README.MD===
[Your generated README.md here]
===LICENSE===
[The full text of the MIT LICENSE here]"""

REVISION_PROMPT = """You are specializing in surgical code modifications. Your task is to update an existing application by adding a new feature while strictly preserving its core functionality and user experience.

### CORE INSTRUCTIONS ###
1. **Analyze Existing Code:** Fully understand the existing code. Identify its core purpose and user interaction model (e.g. "it automatically loads and displays data", "it is an interactive form").
2. **Integrate New Features:** Read the new brief and identify the single new feature to add.
3. **PRESERVE ALL ORIGINAL LOGIC:** The original logic must still be present and functional.
4. **DO NOT CHANGE THE CORE INTERACTION MODEL:** A static page that loaded automatically must remain a static page that loads automatically.
5. **FORBIDDEN:** Unless the brief explicitly asks for it, do not add <textarea> or <button> elements. Only add the specific feature requested.

### YOUR TASK ###

**Existing Code:**
```html
{existing_code}
```

**New Brief (the feature to add):**
```
{brief}
```

**Attachments:** {attachments}

**Checks the Final, Combined Code Must Pass:**
{checks}

Return your response in this exact format:
===INDEX.HTML===
[The full, updated index.html with the new feature integrated]
===README.MD===
[An updated README.md that includes the new feature]
===LICENSE===
[The full text of the MIT LICENSE]"""

# Placeholder used when the previous round's index.html could not be read
MISSING_EXISTING_CODE = "No existing code found"

FALLBACK_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Generated App</title>
  <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
</head>
<body>
  <div class="container mt-5">
    <h1>Generated Application</h1>
    <p>This is a generated application.</p>
  </div>
  <script src="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/js/bootstrap.bundle.min.js"></script>
</body>
</html>"""

FALLBACK_README = """# Generated Application

## Summary
This is an automatically generated web application.

## Setup
No setup required. Open index.html in a web browser.

## Usage
Open the application in your browser and follow the on-screen instructions.

## Code Explanation
This application uses HTML, JavaScript, and Bootstrap for styling."""

# Year-free so the fallback is deterministic
MIT_LICENSE = """MIT License

Copyright (c) Pagesmith contributors

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE."""


def _join(items) -> str:
    return ", ".join(items) if items else "None"


def build_new_app_prompt(brief: str, checks, attachment_names) -> str:
    return NEW_APP_PROMPT.format(
        brief=brief,
        attachments=_join(attachment_names),
        checks=_join(checks),
    )


def build_revision_prompt(existing_code: str, brief: str, checks, attachment_names) -> str:
    return REVISION_PROMPT.format(
        existing_code=existing_code or MISSING_EXISTING_CODE,
        brief=brief,
        attachments=_join(attachment_names),
        checks=_join(checks),
    )
