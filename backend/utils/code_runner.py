# backend/utils/code_runner.py
import os
import subprocess
import sys
import tempfile
import time

# language -> (source file, commands run inside the temp dir)
RUNNERS = {
    "python": ("script.py", [[sys.executable, "script.py"]]),
    "javascript": ("script.js", [["node", "script.js"]]),
    "java": ("Main.java", [["javac", "Main.java"], ["java", "Main"]]),
}


class UnsupportedLanguage(ValueError):
    pass


def run_code(language, code, timeout=10):
    if language not in RUNNERS:
        raise UnsupportedLanguage(f"Unsupported language: {language}")

    filename, commands = RUNNERS[language]
    started = time.monotonic()

    with tempfile.TemporaryDirectory() as workdir:
        with open(os.path.join(workdir, filename), "w") as f:
            f.write(code)

        output, error = "", ""
        for cmd in commands:
            try:
                proc = subprocess.run(
                    cmd, cwd=workdir, capture_output=True, text=True, timeout=timeout,
                )
            except subprocess.TimeoutExpired:
                error = f"Execution timed out after {timeout}s"
                break
            except FileNotFoundError:
                error = f"{cmd[0]} is not available on this server"
                break
            output = proc.stdout
            if proc.returncode != 0:
                error = proc.stderr
                break

    return {
        "output": output,
        "error": error,
        "executionTime": round((time.monotonic() - started) * 1000),
    }
