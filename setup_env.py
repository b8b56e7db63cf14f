import os
import secrets

def generate_signing_secrets():
    print("Generating JWT signing secrets (access + refresh)...")
    # Two independent keys: an access token must never verify as a refresh token
    return secrets.token_urlsafe(64), secrets.token_urlsafe(64)

def setup_env():
    if os.path.exists(".env"):
        response = input("A .env file already exists. Overwrite it? (y/N): ")
        if response.lower() != 'y':
            print("Aborted.")
            return

    if not os.path.exists(".env.example"):
        print("Error: .env.example not found.")
        return

    print("Reading .env.example...")
    with open(".env.example", "r") as f:
        env_content = f.read()

    access_secret, refresh_secret = generate_signing_secrets()
    pepper = secrets.token_urlsafe(32)

    new_lines = []
    for line in env_content.splitlines():
        if line.startswith("JWT_ACCESS_SECRET="):
            new_lines.append(f'JWT_ACCESS_SECRET="{access_secret}"')
        elif line.startswith("JWT_REFRESH_SECRET="):
            new_lines.append(f'JWT_REFRESH_SECRET="{refresh_secret}"')
        elif line.startswith("PASSWORD_PEPPER="):
            new_lines.append(f'PASSWORD_PEPPER="{pepper}"')
        else:
            new_lines.append(line)

    with open(".env", "w") as f:
        f.write("\n".join(new_lines))
        f.write("\n") # Ensure trailing newline
    os.chmod(".env", 0o600)

    print("SUCCESS: .env file created with new signing secrets.")

if __name__ == "__main__":
    setup_env()
