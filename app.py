import exam_season_analysis
from examseason import main as api_main


def main():
    print("Select a tool to run:")
    print("1. Exam Season Analysis Report")
    print("2. Exam Season Analysis Report (no charts)")
    print("3. Report API Server")

    choice = input("Enter the number of the tool you want to run: ").strip()

    tools = {
        "1": lambda: exam_season_analysis.main([]),
        "2": lambda: exam_season_analysis.main(["--no-charts"]),
        "3": api_main.main,
    }

    if choice in tools:
        tools[choice]()
    else:
        print("Invalid choice. Please try again.")


if __name__ == "__main__":
    main()
