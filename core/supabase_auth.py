# core/supabase_auth.py
# Custom DRF authentication class to verify Supabase JWTs

import logging
import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger("cos")

User = get_user_model()


class SupabaseJWTAuthentication(BaseAuthentication):
    """
    Custom authentication class that validates Supabase JWTs.

    This authenticator:
    1. Extracts the JWT from the Authorization header
    2. Verifies the token signature using the Supabase JWT secret
    3. Looks up or creates a Django user based on the Supabase user ID
    """

    www_authenticate_realm = "api"

    def authenticate(self, request):
        auth_header = request.headers.get("Authorization", "")

        if not auth_header.startswith("Bearer "):
            return None  # Let other auth backends handle it

        token = auth_header.split(" ", 1)[1].strip()

        supabase_jwt_secret = getattr(settings, "SUPABASE_JWT_SECRET", None)
        if not supabase_jwt_secret:
            logger.warning("SUPABASE_JWT_SECRET not configured")
            return None

        try:
            # Supabase uses HS256 by default
            payload = jwt.decode(
                token,
                supabase_jwt_secret,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid Supabase token: {e}")
            return None  # Let other auth backends try

        supabase_user_id = payload.get("sub")
        if not supabase_user_id:
            raise AuthenticationFailed("Invalid token: missing user ID")

        user = self._get_or_create_user(supabase_user_id, payload.get("email"), payload)
        return (user, payload)

    def authenticate_header(self, request):
        # Makes DRF answer 401 instead of 403 for anonymous requests
        return f'Bearer realm="{self.www_authenticate_realm}"'

    def _get_or_create_user(self, supabase_user_id: str, email: str, payload: dict):
        """
        Map a Supabase identity onto a Django user.

        Lookup order is the stored Supabase id, then email (accounts created
        before the id was recorded). New users get a unique username derived
        from the email local part.
        """
        user = User.objects.filter(supabase_id=supabase_user_id).first()
        if user is not None:
            return user

        if not email:
            raise AuthenticationFailed("Token missing email claim")

        user = User.objects.filter(email=email).first()
        if user is not None:
            if user.supabase_id is None:
                user.supabase_id = supabase_user_id
                user.save(update_fields=["supabase_id"])
            return user

        username = email.split("@")[0]
        base_username = username
        counter = 1
        while User.objects.filter(username=username).exists():
            username = f"{base_username}_{counter}"
            counter += 1

        metadata = payload.get("user_metadata") or {}
        user = User.objects.create(
            username=username,
            email=email,
            supabase_id=supabase_user_id,
            first_name=(metadata.get("full_name") or metadata.get("name") or "")[:150],
            avatar_url=metadata.get("avatar_url"),
        )
        logger.info(f"Created new user from Supabase: {email}")

        return user
