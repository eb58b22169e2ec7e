from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from assignments.models import Assignment
from groupings.service_utils import ta_assignment


class Command(BaseCommand):
    help = "Assign grading TAs to the groupings of an assignment"

    def add_arguments(self, parser):
        parser.add_argument(
            "--assignment",
            required=True,
            help="Assignment short identifier",
        )
        parser.add_argument(
            "--strategy",
            choices=["random", "all"],
            default="random",
            help="random: one TA per grouping, round robin; all: every TA on every grouping",
        )
        parser.add_argument(
            "--ta",
            dest="tas",
            action="append",
            default=[],
            help="TA user name or id; repeat for several TAs (default: all TAs)",
        )
        parser.add_argument(
            "--grouping",
            dest="groupings",
            action="append",
            type=int,
            default=[],
            help="Grouping id; repeat for several groupings (default: all groupings)",
        )

    def handle(self, *args, **options):
        try:
            assignment = Assignment.objects.get(short_identifier=options["assignment"])
        except Assignment.DoesNotExist:
            raise CommandError("Assignment not found") from None

        User = get_user_model()
        tas = User.objects.filter(taprofile__isnull=False)
        if options["tas"]:
            ids = [int(value) for value in options["tas"] if value.isdigit()]
            names = [value for value in options["tas"] if not value.isdigit()]
            tas = tas.filter(pk__in=ids) | tas.filter(username__in=names)
        ta_ids = list(tas.order_by("id").values_list("pk", flat=True))
        if not ta_ids:
            raise CommandError("No TAs found")

        grouping_ids = options["groupings"] or list(
            assignment.groupings.order_by("id").values_list("pk", flat=True)
        )

        if options["strategy"] == "all":
            created = ta_assignment.assign_all_tas(grouping_ids, ta_ids, assignment)
        else:
            created = ta_assignment.randomly_assign_tas(grouping_ids, ta_ids, assignment)

        self.stdout.write(
            self.style.SUCCESS(f"Assigned {created} TA memberships for {assignment.short_identifier}")
        )
