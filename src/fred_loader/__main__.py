from fred_loader.cli import main

raise SystemExit(main())
