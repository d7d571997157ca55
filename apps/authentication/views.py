from django.contrib.auth import get_user_model
from rest_framework import generics, permissions, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Plan
from .serializers import PlanSerializer, RegisterSerializer, UserSerializer
from .services import get_user_limits

User = get_user_model()


class RegisterView(generics.CreateAPIView):
  serializer_class = RegisterSerializer
  permission_classes = [permissions.AllowAny]


class LoginView(APIView):
  permission_classes = [AllowAny]

  def post(self, request):
    email = (request.data.get("email") or "").strip().lower()
    password = request.data.get("password") or ""

    if not email or not password:
      return Response({"detail": "Email and password are required."}, status=status.HTTP_400_BAD_REQUEST)

    try:
      user = User.objects.get(email=email)
    except User.DoesNotExist:
      return Response({"detail": "Invalid credentials."}, status=status.HTTP_401_UNAUTHORIZED)

    if not user.check_password(password):
      return Response({"detail": "Invalid credentials."}, status=status.HTTP_401_UNAUTHORIZED)

    if not user.is_active:
      return Response({"detail": "User account is inactive."}, status=status.HTTP_403_FORBIDDEN)

    refresh = RefreshToken.for_user(user)
    return Response(
      {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
        "user": UserSerializer(user).data,
      },
      status=status.HTTP_200_OK,
    )


class MeView(generics.RetrieveUpdateAPIView):
  serializer_class = UserSerializer
  permission_classes = [permissions.IsAuthenticated]

  def get_object(self):
    return self.request.user


class UserLimitsView(APIView):
  """
  Plan usage for the current user, used by the create-store and
  create-product forms to disable submission before hitting the limit.
  """

  permission_classes = [permissions.IsAuthenticated]

  def get(self, request):
    limits = get_user_limits(request.user)
    return Response(limits.as_dict(), status=status.HTTP_200_OK)


class PlanListView(generics.ListAPIView):
  serializer_class = PlanSerializer
  permission_classes = [permissions.AllowAny]
  pagination_class = None
  queryset = Plan.objects.filter(is_active=True).order_by("price")
