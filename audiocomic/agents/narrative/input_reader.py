import os
import re
from typing import List
from pypdf import PdfReader
import docx
from audiocomic.core.agent import BaseAgent

# Paragraph-aligned chunks of roughly this many words go to the script writer
TARGET_WORDS_PER_CHUNK = 600

class InputReaderAgent(BaseAgent):
    def process(self, input_path: str) -> str:
        """
        Reads an article and returns its text content.
        Supported formats: .txt, .md, .pdf, .docx
        """
        self.logger.info(f"Reading input file: {input_path}")

        if not os.path.exists(input_path):
            raise FileNotFoundError(f"Input file not found: {input_path}")

        ext = os.path.splitext(input_path)[1].lower()

        if ext in ('.txt', '.md'):
            return self._read_text(input_path)
        elif ext == '.pdf':
            return self._read_pdf(input_path)
        elif ext == '.docx':
            return self._read_docx(input_path)
        else:
            raise ValueError(f"Unsupported file format: {ext}")

    def _read_text(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def _read_pdf(self, path: str) -> str:
        reader = PdfReader(path)
        return "\n\n".join((page.extract_text() or "").strip() for page in reader.pages)

    def _read_docx(self, path: str) -> str:
        doc = docx.Document(path)
        return "\n\n".join(para.text for para in doc.paragraphs if para.text.strip())

    def chunk_text(self, text: str, target_words: int = TARGET_WORDS_PER_CHUNK) -> List[str]:
        """
        Splits text into chunks on paragraph boundaries. A paragraph is never
        split, so a single long paragraph becomes its own oversized chunk.
        """
        paragraphs = re.split(r"\n\n+", text)
        chunks = []
        current = ""
        current_words = 0

        for para in paragraphs:
            para_words = len(para.split())
            if current_words + para_words > target_words and current_words > 0:
                chunks.append(current.strip())
                current = para
                current_words = para_words
            else:
                current += ("\n\n" if current else "") + para
                current_words += para_words

        if current.strip():
            chunks.append(current.strip())

        return chunks
