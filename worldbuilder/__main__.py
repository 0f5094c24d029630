"""Entry point for ``python -m worldbuilder <command>``.

Commands:
    doctor    - probe every configured generation backend
    backends  - show resolved backend configuration (after env/YAML overrides)
    generate  - run one generation request and print the JSON envelope
    serve     - run the FastAPI service with uvicorn
"""
from worldbuilder.cli import main

if __name__ == "__main__":
    main()
